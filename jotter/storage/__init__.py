from .base import Repository, utcnow_iso, parse_timestamp
from .json_store import JsonCollection
from .datastore import DataStore, DEFAULT_SETTINGS
