# Automatically load all models so metadata knows them
from dental_clinic.models.appointment_model import Appointment
from dental_clinic.models.clinic_service_model import ClinicService
from dental_clinic.models.notification_model import Notification
from dental_clinic.models.patient_model import Patient
from dental_clinic.models.system_settings_model import SystemSetting
