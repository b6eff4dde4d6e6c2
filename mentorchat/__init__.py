"""MentorChat: anonymous-by-default student and mentor chat."""
