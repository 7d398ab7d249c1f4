import math

B = 1
KB = 1024 * B
MB = 1024 * KB
GB = 1024 * MB


def bytes_to(size: int, unit: int) -> float:
    """Converts a byte count to ``unit``, rounded half away from zero to 2 decimals."""
    scaled = size / unit * 100
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 100
