import logging
import math

from errors import ConflictError, NotFoundError, ValidationError
from models import (
    Enrollment, Profile, User, STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_NOT_ENROLLED,
)
from models.models import isoformat, utcnow

logger = logging.getLogger(__name__)

PROFILE_TEXT_FIELDS = {
    'fullName': 'full_name',
    'phone': 'phone',
    'address': 'address',
    'school': 'school',
    'bio': 'bio',
}
PROFILE_LIST_FIELDS = {
    'skills': 'skills',
    'interests': 'interests',
}

ALREADY_ENROLLED = 'Already enrolled in this course'


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def _text_list(values):
    if not isinstance(values, list):
        return []
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]


def _number(value, field, default=None, minimum=None, maximum=None):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise ValidationError([{'field': field, 'message': f'{field} must be a number'}])
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError([{'field': field, 'message': f'{field} must be a number'}])
    if not math.isfinite(number):
        raise ValidationError([{'field': field, 'message': f'{field} must be a finite number'}])
    if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
        raise ValidationError([{
            'field': field,
            'message': f'{field} must be between {minimum} and {maximum}'
            if maximum is not None else f'{field} must be at least {minimum}',
        }])
    return int(number) if number.is_integer() else number


def _require_course_id(course_id):
    course_id = course_id.strip() if isinstance(course_id, str) else course_id
    if course_id is None or course_id == '' or isinstance(course_id, bool):
        raise ValidationError([{'field': 'courseId', 'message': 'courseId is required'}])
    return str(course_id)


def sanitize_profile_fields(fields):
    """Map request fields onto profile columns, dropping anything unexpected."""
    values = {column: _text(fields.get(key)) for key, column in PROFILE_TEXT_FIELDS.items()}
    values.update({column: _text_list(fields.get(key)) for key, column in PROFILE_LIST_FIELDS.items()})
    return values


class ProfileService:
    def __init__(self, store):
        self.store = store

    def _profile_view(self, user, profile):
        enrollments = profile.enrollments if profile else []
        return {
            'userId': user.id,
            'username': user.username,
            'email': user.email,
            'joinDate': isoformat(user.created_at),
            'fullName': profile.full_name if profile else '',
            'phone': profile.phone if profile else '',
            'address': profile.address if profile else '',
            'school': profile.school if profile else '',
            'bio': profile.bio if profile else '',
            'skills': list(profile.skills or []) if profile else [],
            'interests': list(profile.interests or []) if profile else [],
            'completedCourses': profile.completed_courses if profile else 0,
            'totalHours': profile.total_hours if profile else 0,
            'purchasedCourses': [enrollment.to_dict() for enrollment in enrollments],
        }

    def get_profile(self, user_id):
        with self.store.session_scope() as session:
            user = session.query(User).filter_by(id=user_id).first()
            if not user:
                raise NotFoundError('User not found')
            profile = session.query(Profile).filter_by(user_id=user_id).first()
            return self._profile_view(user, profile)

    def ensure_profile(self, user_id):
        """Return the id of the user's profile, creating an empty one if needed."""
        try:
            with self.store.session_scope() as session:
                if not session.query(User.id).filter_by(id=user_id).first():
                    raise NotFoundError('User not found')
                profile_id = session.query(Profile.id).filter_by(user_id=user_id).scalar()
                if profile_id is not None:
                    return profile_id
                profile = Profile(user_id=user_id)
                session.add(profile)
                session.flush()
                logger.info("Created profile for user %s", user_id)
                return profile.id
        except ConflictError:
            # Another request created it first
            with self.store.session_scope() as session:
                return session.query(Profile.id).filter_by(user_id=user_id).scalar()

    def upsert_profile(self, user_id, fields):
        values = sanitize_profile_fields(fields)

        with self.store.session_scope() as session:
            if not session.query(User.id).filter_by(id=user_id).first():
                raise NotFoundError('User not found')

        try:
            with self.store.session_scope() as session:
                updated = session.query(Profile).filter_by(user_id=user_id).update(
                    values, synchronize_session=False,
                )
                if not updated:
                    session.add(Profile(user_id=user_id, **values))
        except ConflictError:
            with self.store.session_scope() as session:
                session.query(Profile).filter_by(user_id=user_id).update(
                    values, synchronize_session=False,
                )

        logger.info("Saved profile for user %s", user_id)
        return self.get_profile(user_id)

    def add_course(self, user_id, course_data):
        course_id = _require_course_id(course_data.get('courseId'))
        progress = _number(course_data.get('progress'), 'progress', default=0, minimum=0, maximum=100)
        hours = _number(course_data.get('hours'), 'hours', default=0, minimum=0)
        completed = course_data.get('status') == STATUS_COMPLETED or progress >= 100

        enrollment = Enrollment(
            course_id=course_id,
            title=_text(course_data.get('title')),
            instructor=_text(course_data.get('instructor')),
            progress=100 if completed else progress,
            status=STATUS_COMPLETED if completed else STATUS_IN_PROGRESS,
            rating=_number(course_data.get('rating'), 'rating', default=0),
            price=_text(course_data.get('price')) or 'Free',
            total_modules=_number(course_data.get('totalModules'), 'totalModules', default=0, minimum=0),
            completed_modules=_number(
                course_data.get('completedModules'), 'completedModules', default=0, minimum=0,
            ),
        )

        profile_id = self.ensure_profile(user_id)
        with self.store.session_scope(conflict_message=ALREADY_ENROLLED) as session:
            enrollment.profile_id = profile_id
            session.add(enrollment)
            session.flush()
            session.query(Profile).filter_by(id=profile_id).update(
                {
                    Profile.completed_courses: Profile.completed_courses + (1 if completed else 0),
                    Profile.total_hours: Profile.total_hours + hours,
                },
                synchronize_session=False,
            )

        logger.info("Added course %s to user %s", course_id, user_id)
        return enrollment.to_dict()

    def enroll_course(self, user_id, course_id, title=None, instructor=None, rating=None,
                      total_modules=None):
        course_id = _require_course_id(course_id)
        now = utcnow()
        enrollment = Enrollment(
            course_id=course_id,
            title=_text(title),
            instructor=_text(instructor),
            progress=0,
            status=STATUS_IN_PROGRESS,
            purchase_date=now,
            rating=_number(rating, 'rating', default=0),
            price='Free',
            total_modules=_number(total_modules, 'totalModules', default=0, minimum=0),
            completed_modules=0,
            last_watched=now,
        )

        profile_id = self.ensure_profile(user_id)
        # Duplicates are rejected by the (profile_id, course_id) unique constraint
        with self.store.session_scope(conflict_message=ALREADY_ENROLLED) as session:
            enrollment.profile_id = profile_id
            session.add(enrollment)

        logger.info("User %s enrolled in course %s", user_id, course_id)
        return enrollment.to_dict()

    def update_progress(self, user_id, course_id, progress, hours_spent=None, completed_modules=None):
        course_id = _require_course_id(course_id)
        progress = _number(progress, 'progress', minimum=0, maximum=100)
        if progress is None:
            raise ValidationError([{'field': 'progress', 'message': 'progress is required'}])
        hours_spent = _number(hours_spent, 'hoursSpent', default=0, minimum=0)
        completed_modules = _number(completed_modules, 'completedModules', minimum=0)

        with self.store.session_scope() as session:
            profile_id = session.query(Profile.id).filter_by(user_id=user_id).scalar()
            if profile_id is None:
                raise NotFoundError('Profile not found')

            course = session.query(Enrollment).filter_by(profile_id=profile_id, course_id=course_id)
            values = {Enrollment.progress: progress, Enrollment.last_watched: utcnow()}
            if completed_modules is not None:
                values[Enrollment.completed_modules] = completed_modules
            if not course.update(values, synchronize_session=False):
                raise NotFoundError('Course not found in profile')

            counters = {}
            if progress >= 100:
                # Only the update that flips the status counts the completion
                newly_completed = course.filter(Enrollment.status != STATUS_COMPLETED).update(
                    {Enrollment.status: STATUS_COMPLETED}, synchronize_session=False,
                )
                if newly_completed:
                    counters[Profile.completed_courses] = Profile.completed_courses + 1
                    logger.info("User %s completed course %s", user_id, course_id)
            if hours_spent:
                counters[Profile.total_hours] = Profile.total_hours + hours_spent
            if counters:
                session.query(Profile).filter_by(id=profile_id).update(
                    counters, synchronize_session=False,
                )

            current_progress, status = course.with_entities(
                Enrollment.progress, Enrollment.status,
            ).one()

        return {'progress': current_progress, 'status': status}

    def get_course_status(self, user_id, course_id):
        with self.store.session_scope() as session:
            enrollment = (
                session.query(Enrollment)
                .join(Profile, Enrollment.profile_id == Profile.id)
                .filter(Profile.user_id == user_id, Enrollment.course_id == str(course_id))
                .first()
            )
            if not enrollment:
                return {'enrolled': False, 'progress': 0, 'status': STATUS_NOT_ENROLLED}
            return {
                'enrolled': True,
                'progress': enrollment.progress,
                'status': enrollment.status,
                'enrollmentDate': isoformat(enrollment.purchase_date),
                'completedModules': enrollment.completed_modules or 0,
            }
