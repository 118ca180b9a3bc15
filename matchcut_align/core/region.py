"""Semantic facial region enumeration."""

from enum import Enum


class Region(Enum):
    """Named landmark groups sharing an importance weight."""
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    NOSE_BRIDGE = "nose_bridge"
    NOSE_TIP = "nose_tip"
    MOUTH_OUTER = "mouth_outer"
    MOUTH_INNER = "mouth_inner"
    JAW = "jaw"
    FOREHEAD = "forehead"
    CHIN = "chin"
