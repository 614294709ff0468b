"""
Fixed vocabularies shared by the store, the policy and the API.
"""

# Default subject catalogue offered to the UI. Subjects are free-form strings,
# this list is what the forms suggest and what the seeded teacher teaches.
SUBJECTS = (
    "Math",
    "Russian",
    "Literature",
    "English",
    "History",
    "Social Studies",
    "Geography",
    "Biology",
    "Physics",
    "Chemistry",
    "Computer Science",
    "Physical Education",
)

# Six-day school week, in display order.
WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

AVATAR_GLYPHS = (
    "👨‍🏫", "👩‍🏫", "🧑‍🏫",
    "👨‍🎓", "👩‍🎓", "🧑‍🎓",
    "👨", "👩", "🧑",
    "😊", "😄", "🤓", "😎",
    "🎒", "📚", "📖", "✏️",
)

MIN_GRADE = 2
MAX_GRADE = 5

# Histogram buckets, highest first (matches how the dashboards list them).
GRADE_VALUES = (5, 4, 3, 2)
