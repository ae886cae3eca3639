"""External collaborators and background-style automation"""
