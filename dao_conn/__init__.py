from .conn import DaoConnection, FetchMode, ErrorMode
from .dao import Dao, TableConfig
from .audit import Audit, audited
from .config import DB_CONFIG, DaoSettings, settings

__all__ = [
    'DaoConnection', 'FetchMode', 'ErrorMode', 'Dao', 'TableConfig',
    'Audit', 'audited', 'DB_CONFIG', 'DaoSettings', 'settings'
]
