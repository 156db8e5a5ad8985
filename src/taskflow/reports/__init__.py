"""Pure completion statistics: monthly/daily stats, grades, streaks, filters."""
