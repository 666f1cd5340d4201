"""User registry. Pseudos are unique after trimming, case-sensitive."""

from course_board.registry.base import EntityRegistry
from course_board.registry.models import User, UserPayload


class UserRegistry(EntityRegistry[User, UserPayload]):
    entity_type = "user"
    map_name = "users"
    record_model = User
    payload_model = UserPayload
    required_fields = ("name", "pseudo", "avatar_url")
    text_fields = ("name", "pseudo", "avatar_url")
    unique_field = "pseudo"
