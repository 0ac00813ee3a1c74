from . import api_bp
from bhishak.extensions import limiter
from bhishak.utils.decorators import (
    admin_required, audit_action, doctor_required, patient_required, super_admin_required
)
from bhishak.utils.feature_flags import require_patient_signup
from .controllers import (
    admin_reveal_controller, audit_controller, auth_controller, doctor_discovery_controller,
    medicine_controller, patient_auth_controller, settings_controller
)


# --- Staff Authentication Endpoints ---
@api_bp.route('/auth/admin/login', methods=['POST'])
@limiter.limit("10 per minute")
def admin_login():
    return auth_controller.admin_login()

@api_bp.route('/auth/doctor/login', methods=['POST'])
@limiter.limit("10 per minute")
def doctor_login():
    return auth_controller.doctor_login()


# --- Patient Authentication Endpoints ---
@api_bp.route('/patient-auth/send-otp', methods=['POST'])
@require_patient_signup
@limiter.limit("5 per minute")
def patient_send_otp():
    return patient_auth_controller.send_otp()

@api_bp.route('/patient-auth/verify-otp', methods=['POST'])
@limiter.limit("10 per minute")
def patient_verify_otp():
    return patient_auth_controller.verify_otp()

@api_bp.route('/patient-auth/signup', methods=['POST'])
@require_patient_signup
@limiter.limit("5 per hour")
def patient_signup():
    return patient_auth_controller.signup()

@api_bp.route('/patient-auth/login', methods=['POST'])
@limiter.limit("10 per minute")
def patient_login():
    return patient_auth_controller.login()

@api_bp.route('/patient-auth/refresh', methods=['POST'])
def patient_refresh():
    return patient_auth_controller.refresh_token()

@api_bp.route('/patient-auth/profile', methods=['GET'])
@patient_required
def patient_profile(patient):
    return patient_auth_controller.get_profile(patient)

@api_bp.route('/patient-auth/profile', methods=['PUT'])
@patient_required
@audit_action("PATIENT_UPDATE", "PATIENT")
def patient_update_profile(patient):
    return patient_auth_controller.update_profile(patient)

@api_bp.route('/patient-auth/change-pin', methods=['POST'])
@patient_required
@audit_action("PASSWORD_CHANGE", "PATIENT")
def patient_change_pin(patient):
    return patient_auth_controller.change_pin(patient)

@api_bp.route('/patient-auth/consultations', methods=['GET'])
@patient_required
def patient_consultations(patient):
    return patient_auth_controller.get_my_consultations(patient)

@api_bp.route('/patient-auth/medical-records', methods=['GET'])
@patient_required
@audit_action("PATIENT_DATA_ACCESS", "MEDICAL_RECORD")
def patient_medical_records(patient):
    return patient_auth_controller.get_my_medical_records(patient)


# --- Audit Endpoints (super admin only) ---
@api_bp.route('/admin/audit-logs', methods=['GET'])
@super_admin_required
def audit_logs(admin):
    return audit_controller.get_audit_logs()

@api_bp.route('/admin/admin-access-logs', methods=['GET'])
@super_admin_required
def admin_access_logs(admin):
    return audit_controller.get_admin_access_logs()

@api_bp.route('/admin/audit-stats', methods=['GET'])
@super_admin_required
def audit_stats(admin):
    return audit_controller.get_audit_stats()


# --- Sensitive Identifier Endpoints ---
@api_bp.route('/admin/reveal-aadhaar/<int:doctor_id>', methods=['POST'])
@admin_required
def reveal_aadhaar(doctor_id, admin):
    return admin_reveal_controller.reveal_aadhaar(doctor_id, admin)

@api_bp.route('/admin/reveal-upi/<int:doctor_id>', methods=['POST'])
@admin_required
def reveal_upi(doctor_id, admin):
    return admin_reveal_controller.reveal_upi_id(doctor_id, admin)

@api_bp.route('/admin/doctors/<int:doctor_id>/identifiers', methods=['GET'])
@admin_required
def masked_identifiers(doctor_id, admin):
    return admin_reveal_controller.get_masked_identifiers(doctor_id)


# --- System Settings Endpoints ---
@api_bp.route('/settings/public/<string:key>', methods=['GET'])
def public_setting(key):
    return settings_controller.get_public_setting_value(key)

@api_bp.route('/settings', methods=['GET'])
@admin_required
def list_settings(admin):
    return settings_controller.get_settings()

@api_bp.route('/settings', methods=['POST'])
@super_admin_required
@audit_action("ADMIN_SETTINGS_CHANGE", "SYSTEM_SETTING")
def create_setting(admin):
    return settings_controller.create_setting(admin)

@api_bp.route('/settings/<string:key>', methods=['PUT'])
@super_admin_required
@audit_action("ADMIN_SETTINGS_CHANGE", "SYSTEM_SETTING", resource_id_arg='key')
def update_setting(key, admin):
    return settings_controller.update_setting(key, admin)

@api_bp.route('/settings/<string:key>', methods=['DELETE'])
@super_admin_required
@audit_action("ADMIN_SETTINGS_CHANGE", "SYSTEM_SETTING", resource_id_arg='key')
def delete_setting(key, admin):
    return settings_controller.delete_setting(key, admin)


# --- Medicine Catalog Endpoints (admin) ---
@api_bp.route('/medicines', methods=['POST'])
@admin_required
@audit_action("MEDICINE_CREATE", "MEDICINE")
def create_medicine(admin):
    return medicine_controller.create_medicine(admin)

@api_bp.route('/medicines/admin/all', methods=['GET'])
@admin_required
def all_medicines(admin):
    return medicine_controller.get_all_medicines()

@api_bp.route('/medicines/<int:medicine_id>/verify', methods=['PUT'])
@admin_required
@audit_action("MEDICINE_VERIFY", "MEDICINE", resource_id_arg='medicine_id')
def verify_medicine(medicine_id, admin):
    return medicine_controller.verify_medicine(medicine_id, admin)

@api_bp.route('/medicines/<int:medicine_id>/ban', methods=['PUT'])
@super_admin_required
@audit_action("MEDICINE_BAN", "MEDICINE", resource_id_arg='medicine_id')
def ban_medicine(medicine_id, admin):
    return medicine_controller.ban_medicine(medicine_id, admin)

@api_bp.route('/medicines/<int:medicine_id>/unban', methods=['PUT'])
@super_admin_required
@audit_action("MEDICINE_UNBAN", "MEDICINE", resource_id_arg='medicine_id')
def unban_medicine(medicine_id, admin):
    return medicine_controller.unban_medicine(medicine_id, admin)


# --- Medicine Endpoints (doctor) ---
@api_bp.route('/medicines/available', methods=['GET'])
@doctor_required
def available_medicines(doctor):
    return medicine_controller.get_available_medicines(doctor)

@api_bp.route('/medicines/my-medicines', methods=['GET'])
@doctor_required
def my_medicines(doctor):
    return medicine_controller.get_my_medicines(doctor)

@api_bp.route('/medicines/my-medicines', methods=['POST'])
@doctor_required
def add_my_medicine(doctor):
    return medicine_controller.add_to_my_medicines(doctor)

@api_bp.route('/medicines/my-medicines/<int:medicine_id>', methods=['DELETE'])
@doctor_required
def remove_my_medicine(medicine_id, doctor):
    return medicine_controller.remove_from_my_medicines(medicine_id, doctor)

@api_bp.route('/medicines/validate', methods=['POST'])
@doctor_required
def validate_medications(doctor):
    return medicine_controller.validate_prescription_medications(doctor)


# --- Doctor Discovery Endpoints ---
@api_bp.route('/doctors/search', methods=['GET'])
def search_doctors():
    return doctor_discovery_controller.search_doctors()

@api_bp.route('/doctors/specializations', methods=['GET'])
def doctor_specializations():
    return doctor_discovery_controller.get_specializations()

@api_bp.route('/doctors/<int:doctor_id>/public', methods=['GET'])
def doctor_public_profile(doctor_id):
    return doctor_discovery_controller.get_doctor_public_profile(doctor_id)

@api_bp.route('/doctors/online-status', methods=['POST'])
@doctor_required
def doctor_online_status(doctor):
    return doctor_discovery_controller.update_online_status(doctor)

@api_bp.route('/doctors/profile', methods=['PUT'])
@doctor_required
@audit_action("DOCTOR_UPDATE", "DOCTOR")
def doctor_update_profile(doctor):
    return doctor_discovery_controller.update_doctor_profile(doctor)
