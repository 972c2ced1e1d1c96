# assignment_eval/models/user.py
from sqlalchemy import Column, Integer, String, DateTime

from assignment_eval.db.base_class import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)  # display name, not unique
    role = Column(String(20), nullable=False, default="student")  # student / teacher / admin
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
