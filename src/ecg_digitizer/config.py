# Layout defaults
DEFAULT_ROWS = 6
DEFAULT_COLS = 2
N_LEADS = 12

# Concurrency
DEFAULT_MAX_WORKERS = 4

# Grid localization
CANNY_LOW_THRESHOLD = 50.0
CANNY_HIGH_THRESHOLD = 200.0
POLY_EPSILON_RATIO = 0.01
MIN_GRID_AREA_RATIO = 0.05

# Gridline removal (HSV, OpenCV 8-bit ranges)
GRID_HSV_LOWER = (0, 0, 168)
GRID_HSV_UPPER = (255, 255, 255)
OTSU_LEVELS = 256
OTSU_OMEGA_EPS = 1e-12

# Binary image values
BLACK = 0
WHITE = 255

# Border repair
BORDER_WIDTH = 10
BORDER_BLACK_RATIO = 0.95
BORDER_BRIDGE_RATIO = 0.02

# ROI detection
ROI_WINDOW = 10
ROI_MIN_DISTANCE_RATIO = 0.1

# Path search: gap penalty = width * ratio per blank row
GAP_PENALTY_RATIO = 0.1

# Reference pulse segmentation
PIXEL_EPS = 5
MIN_PULSE_WIDTH = 10
PULSE_WIDTH_FACTOR = 3
MIN_PULSE_AMPLITUDE = 10

# Vectorization
SAMPLING_RATE = 500
VOLTAGE_DECIMALS = 4

# Trace rendering (BGR)
TRACE_TICK_SPACING = 20
TRACE_TICK_COLOR = (0, 0, 0)
TRACE_TICK_THICKNESS = 1
TRACE_LINE_THICKNESS = 2
TRACE_PALETTE = (
    (0, 0, 255),
    (0, 255, 0),
    (255, 0, 0),
    (0, 200, 255),
    (255, 255, 0),
    (255, 0, 255),
    (0, 0, 125),
    (0, 125, 0),
    (125, 0, 0),
    (0, 100, 125),
    (125, 125, 0),
    (125, 0, 125),
)
