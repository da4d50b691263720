"""Central module containing constants and tolerances"""

from __future__ import annotations

import math

TWO_PI: float = 2.0 * math.pi
HALF_PI: float = 0.5 * math.pi

###############################################################################
# Segment analysis
###############################################################################
# magnitude below which the tangent at a cubic's cusp parameter counts as vanished
CUSP_EPSILON: float = 1.0e-7
# control point distance below which a cubic is reduced to a quadratic
DEGREE_REDUCTION_EPSILON: float = 1.0e-9
# interior extrema closer than this to 0 or 1 (or to each other) are dropped
EXTREMA_EPSILON: float = 1.0e-10
# t values this close to 0 or 1 use the closed-form end curvature
CURVATURE_EPSILON: float = 1.0e-7
# start/end distance below which a collinear cubic is considered a closed loop
COLLINEAR_EPSILON: float = 1.0e-7
# hits closer than this to a line's start along the ray are rejected
LINE_INTERSECTION_EPSILON: float = 1.0e-8
# angles closer than this to an arc end snap to that end in Arc.map_angle()
ARC_ANGLE_SNAP_EPSILON: float = 1.0e-8
# RayIntersection validation
RAY_NORMAL_EPSILON: float = 1.0e-7
RAY_T_EPSILON: float = 1.0e-10

###############################################################################
# Offsetting / stroking
###############################################################################
# quadratic offsets: 5 levels of binary subdivision -> 32 quadratics
QUADRATIC_OFFSET_LEVELS: int = 5
# cubic and elliptical arc offsets: number of sample points
OFFSET_SAMPLE_COUNT: int = 32
# first/last points closer than this need no implicit closing segment
CLOSING_SEGMENT_EPSILON: float = 1.0e-9
# perpendicular dot above which a join is on the convex side
JOIN_CONVEX_EPSILON: float = 1.0e-12
# miter joins with an interior angle closer than this to pi fall back to bevel
MITER_ANGLE_EPSILON: float = 1.0e-5

###############################################################################
# Arc length / flatness
###############################################################################
ARC_LENGTH_DISTANCE_EPSILON: float = 1.0e-10
ARC_LENGTH_CURVE_EPSILON: float = 1.0e-8
ARC_LENGTH_MAX_LEVELS: int = 15

###############################################################################
# SVG output
###############################################################################
# arcs spanning more than 2*pi minus this are written as two SVG arc commands
SVG_FULL_CIRCLE_EPSILON: float = 0.01
SVG_NUMBER_DIGITS: int = 20

###############################################################################
# Shape area
###############################################################################
AREA_POLYGONIZE_STEPS: int = 64

###############################################################################
# Closest points
###############################################################################
# monotone pieces are halved until all remaining candidates are shorter than this
CLOSEST_POINT_THRESHOLD: float = 1.0e-7
# results within this (squared) distance of the best one, or of each other, are merged
CLOSEST_POINT_EPSILON: float = 1.0e-11

###############################################################################
# Piecewise linear approximation / dashing
###############################################################################
PIECEWISE_LINEAR_MIN_LEVELS: int = 0
PIECEWISE_LINEAR_MAX_LEVELS: int = 7
# squared deviation threshold, scales with the shape
PIECEWISE_LINEAR_DISTANCE_EPSILON: float = 0.16
PIECEWISE_LINEAR_CURVE_EPSILON: float = 0.002
DASH_DISTANCE_EPSILON: float = 1.0e-10
DASH_CURVE_EPSILON: float = 1.0e-8
DASH_MAX_DEPTH: int = 14
# dashes whose ends are closer than this are joined into one subpath
DASH_JOIN_EPSILON: float = 1.0e-5
