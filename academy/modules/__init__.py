"""Domain modules package."""

from academy.modules.booking import models as booking_models  # noqa: F401
from academy.modules.identity import models as identity_models  # noqa: F401
from academy.modules.profiles import models as profiles_models  # noqa: F401
from academy.modules.scheduling import models as scheduling_models  # noqa: F401
