from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, DateTime, Float, ForeignKey, Enum as DbEnum, Integer, JSON, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from werkzeug.security import generate_password_hash, check_password_hash

Base = declarative_base()

STATUS_IN_PROGRESS = 'in-progress'
STATUS_COMPLETED = 'completed'
STATUS_NOT_ENROLLED = 'not-enrolled'


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    if not value:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(120), unique=True, nullable=False)
    password_hash = Column(String(256), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


class Profile(Base):
    __tablename__ = 'profiles'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False)
    full_name = Column(String(200), nullable=False, default='')
    phone = Column(String(50), nullable=False, default='')
    address = Column(String(500), nullable=False, default='')
    school = Column(String(200), nullable=False, default='')
    bio = Column(String(2000), nullable=False, default='')
    skills = Column(JSON, nullable=False, default=list)
    interests = Column(JSON, nullable=False, default=list)
    completed_courses = Column(Integer, nullable=False, default=0)
    total_hours = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    enrollments = relationship(
        'Enrollment', order_by='Enrollment.id', back_populates='profile', lazy='selectin',
    )


class Enrollment(Base):
    __tablename__ = 'enrollments'
    __table_args__ = (
        UniqueConstraint('profile_id', 'course_id', name='uq_enrollment_profile_course'),
    )

    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)
    course_id = Column(String(200), nullable=False, index=True)
    title = Column(String(200))
    instructor = Column(String(200))
    progress = Column(Float, nullable=False, default=0)
    status = Column(
        DbEnum(STATUS_IN_PROGRESS, STATUS_COMPLETED, name='enrollment_status'),
        nullable=False, default=STATUS_IN_PROGRESS,
    )
    purchase_date = Column(DateTime(timezone=True), default=utcnow)
    rating = Column(Float)
    price = Column(String(50), nullable=False, default='Free')
    total_modules = Column(Integer, nullable=False, default=0)
    completed_modules = Column(Integer, nullable=False, default=0)
    last_watched = Column(DateTime(timezone=True), default=utcnow)

    profile = relationship('Profile', back_populates='enrollments')

    def to_dict(self):
        return {
            'courseId': self.course_id,
            'title': self.title,
            'instructor': self.instructor,
            'progress': self.progress,
            'status': self.status,
            'purchaseDate': isoformat(self.purchase_date),
            'rating': self.rating,
            'price': self.price,
            'totalModules': self.total_modules,
            'completedModules': self.completed_modules,
            'lastWatched': isoformat(self.last_watched),
        }
