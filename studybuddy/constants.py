"""
Shared constants for streaks, gamification and reminders.
"""

# Points required to reach level N+1
LEVEL_THRESHOLDS = {
    1: 150,
    2: 500,
    3: 750,
    4: 1000,
    5: 2000,
    6: 3000,
    7: 4000,
    8: 5000,
    9: 6000,
    10: 7000,
}
MIN_LEVEL = 1
MAX_LEVEL = 10

# Streak lengths that trigger a celebration
STREAK_MILESTONES = (3, 7, 14, 30, 50, 100)

# Points awarded by the streak engine
STREAK_POINTS_CONTINUE = 5
STREAK_POINTS_RESTART = 2
STREAK_POINTS_MILESTONE = 10

# Activity types accepted by award_points
ACTIVITY_TASK = "task"
ACTIVITY_STREAK = "streak"
ACTIVITY_GOAL = "goal"
ACTIVITY_HABIT = "habit"
ACTIVITY_FEATURE = "feature"

# Reminder offsets
REMINDER_1H = "1h"
REMINDER_2H = "2h"
REMINDER_1D = "1d"
REMINDER_2D = "2d"
REMINDER_CUSTOM = "custom"
REMINDER_OPTIONS = (REMINDER_1H, REMINDER_2H, REMINDER_1D, REMINDER_2D, REMINDER_CUSTOM)

# Due time used when a task has a due date only
DEFAULT_DUE_HOUR = 9
DEFAULT_DUE_MINUTE = 0

# Day anchor for streak dates
DAY_ANCHOR_SERVER = "server"
DAY_ANCHOR_USER = "user"

# Push notifications
TASK_REMINDER_SOUND = "alarm_clock_90867.wav"
TASK_REMINDER_CHANNEL = "task-reminders-v3"
NOTIFICATION_TYPE_TASK_REMINDER = "task_reminder"

DEFAULT_LOG_DIRECTORY_DEV = "./logs"
