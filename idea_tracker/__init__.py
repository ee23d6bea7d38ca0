"""Business Ideas Tracker — track business ideas and share them with collaborators."""
