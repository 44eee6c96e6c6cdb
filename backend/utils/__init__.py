"""
Utility functions
"""
from .datetime_utils import neo4j_datetime_to_python, format_relative_time, now_millis
from .id_generator import generate_id, validate_id

__all__ = [
    'neo4j_datetime_to_python',
    'format_relative_time',
    'now_millis',
    'generate_id',
    'validate_id',
]
