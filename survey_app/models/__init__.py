from .database import init_db, get_db, get_db_path
from .user import User
from .survey import Survey
from .response import Response

__all__ = ['init_db', 'get_db', 'get_db_path', 'User', 'Survey', 'Response']
