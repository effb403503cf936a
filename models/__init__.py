from models.models import (  # noqa
    Base, User, Profile, Enrollment,
    STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_NOT_ENROLLED,
)
from models.store import Store, StoreConfig  # noqa
