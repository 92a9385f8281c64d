from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey

from dental_clinic.utils.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(Integer, primary_key=True, index=True)

    # Payment Completed / Payment Installment / Payment Reopened /
    # Patient Attended / Patient Unattended / Upcoming / Unattended
    type = Column(String(40), nullable=False, index=True)

    appointment_id = Column(
        Integer, ForeignKey("appointments.appointment_id", ondelete="SET NULL"), nullable=True
    )
    patient_id = Column(
        Integer, ForeignKey("patients.patient_id", ondelete="SET NULL"), nullable=True
    )

    message = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, index=True)
    read = Column(Boolean, nullable=False, default=False)
