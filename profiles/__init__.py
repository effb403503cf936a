from profiles.profiles import profile_bp, get_profile_service  # noqa
from profiles.service import ProfileService  # noqa
