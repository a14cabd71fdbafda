"""Application-wide constants for the Planner backend."""

from __future__ import annotations

import calendar

# Time block field constraints
MIN_TITLE_LENGTH = 1
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
DEFAULT_BLOCK_COLOR = "#007bff"

# Calendar semantics
DEFAULT_TIMEZONE = "UTC"
WEEK_START_DAYS = {
    "monday": calendar.MONDAY,
    "sunday": calendar.SUNDAY,
}
DAYS_PER_WEEK = 7

# Calendar grid layout (day/week views)
MINUTES_PER_DAY = 24 * 60
CALENDAR_GRID_HEIGHT = 1000.0
CALENDAR_GRID_WIDTH = 100.0

DEFAULT_LAZY_LOAD_BATCH_SIZE = 20

# Error messages
ERROR_INVALID_TIME_RANGE = "End time must be after start time"
ERROR_TIME_BLOCK_NOT_FOUND = "Time block not found"
ERROR_TIME_BLOCK_CONFLICT = "Time block conflicts with existing time blocks"

# Brand Configuration
BRAND_NAME = "Planner"

# API Documentation
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = f"Backend API for {BRAND_NAME} - tasks, time blocks and calendar views"
API_VERSION = "1.0.0"
