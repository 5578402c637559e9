# Queue backend — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.counter import CounterRecord        # noqa
from app.models.history import HistoryRecord        # noqa
from app.models.reset_state import ResetState       # noqa
from app.models.rating import Rating                # noqa
