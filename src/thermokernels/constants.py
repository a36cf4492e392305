# Below this magnitude the total inflow of an element is treated as zero
TINY_INFLOW = 1.0e-300

DEFAULT_NEWTON_TOLERANCE = 1.0e-8
DEFAULT_MAX_NEWTON_ITERATIONS = 50
