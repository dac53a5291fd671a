"""Image discovery configuration."""

# =============================================================================
# Supported Formats
# =============================================================================
# Only these extensions are offered to the vision model. Matching is
# case-insensitive.

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")

# =============================================================================
# Staleness
# =============================================================================
# Filesystems report modification times with different precision. A stored
# record is considered current when its recorded time is within this many
# seconds of the file's modification time.

UP_TO_DATE_TOLERANCE_SECONDS = 1.0
