from .math_utils import round_half_up, percentage, optional_percentage, clamp, to_number, to_integer, to_bool

__all__ = [
    'round_half_up',
    'percentage',
    'optional_percentage',
    'clamp',
    'to_number',
    'to_integer',
    'to_bool'
]
