from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text

from .database import Base


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(String(36), primary_key=True)  # UUID4
    owner_id = Column(String(255), nullable=False, index=True)  # Freelancer who drafted it
    client_id = Column(String(255), nullable=False, index=True)
    client_email = Column(String(255), nullable=True)
    proposal_id = Column(String(36), nullable=True)  # Set when created from a proposal
    # Status workflow: draft → sent → signed, or draft/sent → cancelled
    # signed and cancelled are terminal; cancelled doubles as the soft delete
    status = Column(String(20), nullable=False, default="draft", index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    deliverables = Column(JSON, nullable=False, default=list)  # Ordered list of strings
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    timeline = Column(String(500), nullable=True)

    # Client signature audit trail, populated only when status is signed
    signed_by = Column(String(255), nullable=True)
    signed_at = Column(DateTime, nullable=True)
    signer_name = Column(String(255), nullable=True)
    signer_email = Column(String(255), nullable=True)
    signature_ip = Column(String(45), nullable=True)  # IPv4 or IPv6
    signature_user_agent = Column(String(500), nullable=True)

    sent_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False, index=True)
    # Optimistic concurrency token, bumped on every write
    version = Column(Integer, nullable=False, default=1)
