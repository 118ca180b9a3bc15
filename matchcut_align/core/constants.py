"""Constants and default values for landmark registration."""

from .alignment_mode import AlignmentMode
from .region import Region

# MediaPipe 468/478-point face mesh indices per semantic region
# Left/right follow image coordinates (LEFT_EYE appears on the left of the photo)
FACIAL_REGIONS = {
    Region.LEFT_EYE: (33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246),
    Region.RIGHT_EYE: (362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398),
    Region.NOSE_BRIDGE: (6, 8, 9, 10, 151, 195, 197, 196, 3, 51, 48, 115, 131, 134, 102, 49, 220, 305),
    Region.NOSE_TIP: (1, 2, 5, 4, 19, 94, 125, 141, 235, 236, 237, 238, 239, 240, 241, 242),
    Region.MOUTH_OUTER: (61, 146, 91, 181, 84, 17, 314, 405, 320, 307, 375, 321, 308, 324, 318),
    Region.MOUTH_INNER: (78, 95, 88, 178, 87, 14, 317, 402, 318, 324, 308, 415, 310, 311, 312),
    Region.JAW: (172, 136, 150, 149, 176, 148, 152, 377, 400, 378, 379, 365, 397, 288, 361, 323),
    Region.FOREHEAD: (10, 151, 9, 8, 107, 55, 65, 52, 53, 46),
    Region.CHIN: (18, 175, 199, 200, 16, 17),
}

# Region importance weights (distributed evenly over the region's points)
FULL_FACE_WEIGHTS = {
    Region.LEFT_EYE: 0.4,
    Region.RIGHT_EYE: 0.4,
    Region.NOSE_BRIDGE: 0.15,
    Region.NOSE_TIP: 0.1,
    Region.MOUTH_OUTER: 0.12,
    Region.MOUTH_INNER: 0.08,
    Region.JAW: 0.15,
    Region.FOREHEAD: 0.05,
    Region.CHIN: 0.1,
}

MODE_REGION_WEIGHTS = {
    AlignmentMode.FULL_FACE: FULL_FACE_WEIGHTS,
    # Eyes and nose dominate, jaw/forehead/chin dropped
    AlignmentMode.FEATURE_SPECIFIC: {
        Region.LEFT_EYE: 0.6,
        Region.RIGHT_EYE: 0.6,
        Region.NOSE_BRIDGE: 0.15,
        Region.NOSE_TIP: 0.13,
        Region.MOUTH_OUTER: 0.12,
        Region.MOUTH_INNER: 0.08,
    },
    # Only regions that do not move with expression
    AlignmentMode.EXPRESSION_INVARIANT: {
        Region.LEFT_EYE: 0.6,
        Region.RIGHT_EYE: 0.6,
        Region.NOSE_BRIDGE: 0.4,
    },
    AlignmentMode.PERSPECTIVE_3D: FULL_FACE_WEIGHTS,
}

# Landmark confidence model
MIN_LANDMARK_CONFIDENCE = 0.7
BOUNDARY_MARGIN = 0.05
BASE_CONFIDENCE = 0.8
RELIABLE_REGION_BONUS = 0.15
RELIABLE_REGIONS = frozenset({Region.LEFT_EYE, Region.RIGHT_EYE, Region.NOSE_BRIDGE})
BOUNDARY_PENALTY = 0.2
DEPTH_PENALTY = 0.15
DEPTH_OUTLIER_THRESHOLD = 0.3
MAX_VALID_DEPTH = 0.5
MIN_POINT_CONFIDENCE = 0.1
MAX_POINT_CONFIDENCE = 1.0
MIN_VALID_POINTS = 3
MIN_CORRESPONDENCES = 3

# Canonical face layout
FACE_HEIGHT_RATIO = 0.6      # of min(width, height)
FACE_WIDTH_RATIO = 0.75      # of face height
EYE_SPACING_RATIO = 0.35     # of face width

# Region anchors as (x, y) offsets from the face centre in units of face height.
# Eye x offsets are filled in from the eye spacing.
REGION_ANCHORS = {
    Region.LEFT_EYE: (None, -0.15),
    Region.RIGHT_EYE: (None, -0.15),
    Region.NOSE_BRIDGE: (0.0, -0.06),
    Region.NOSE_TIP: (0.0, 0.05),
    Region.MOUTH_OUTER: (0.0, 0.20),
    Region.MOUTH_INNER: (0.0, 0.20),
    Region.JAW: (0.0, 0.30),
    Region.FOREHEAD: (0.0, -0.32),
    Region.CHIN: (0.0, 0.40),
}

# Solver
RESIDUAL_TOLERANCE = 50.0            # pixels; residual at which confidence bottoms out
FULL_CORRESPONDENCE_COUNT = 20
DEGENERATE_SINGULAR_RATIO = 1e-3
DEGENERATE_CONFIDENCE_CAP = 0.3
MIN_SOLVE_CONFIDENCE = 0.1

# Kalman filter
STATE_SIZE = 10       # [tx, ty, tz, angle, scale, vtx, vty, vtz, vangle, vscale]
OBSERVATION_SIZE = 5  # [tx, ty, tz, angle, scale]
PROCESS_NOISE = 0.005
MEASUREMENT_NOISE = 0.05
INITIAL_UNCERTAINTY = 0.5
VELOCITY_DECAY = 0.95
DEFAULT_TIME_STEP = 1.0
MAX_TIME_STEP = 5.0
MAX_VARIANCE = 1.0
MAX_CONDITION_NUMBER = 1e8
FIRST_MEASUREMENT_CONFIDENCE = 0.5
FILTER_CONFIDENCE_BOOST = 0.2

# Orchestrator
HISTORY_CAPACITY = 50
STATISTICS_WINDOW = 10
EMA_ALPHA = 0.15
MIN_DETECTION_CONFIDENCE = 0.3

# Common output canvases (width, height)
RESOLUTIONS = {
    "480p": (640, 480),
    "720p": (1280, 720),
    "1080p": (1920, 1080),
}
