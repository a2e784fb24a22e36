"""User registration — phone-keyed lookup-or-create."""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from streetmarket.catalogue.user import Role, User
from streetmarket.domain import streetmarket

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="User")
class RegisterOrFindUser:
    """Return the user owning ``phone``, registering them first if needed."""

    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=64)
    role = String(choices=Role, default=Role.CUSTOMER.value)
    category = String(max_length=50)


@streetmarket.command_handler(part_of=User)
class RegistrationHandler:
    @handle(RegisterOrFindUser)
    def register_or_find(self, command):
        repo = current_domain.repository_for(User)

        existing = repo.find_by_phone(command.phone)
        if existing is not None:
            logger.debug("Phone already registered", user_id=str(existing.id))
            return str(existing.id)

        user = User.register(
            name=command.name,
            phone=command.phone,
            role=command.role or Role.CUSTOMER.value,
            category=command.category,
        )
        repo.add(user)
        logger.info("User registered", user_id=str(user.id), role=user.role)
        return str(user.id)
