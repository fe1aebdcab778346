"""Taskboard — multi-tenant project boards.

Projects hold boards, boards hold ordered columns, columns hold tasks,
tasks hold threaded comments. Access to everything below a project is
inherited from the project's owner, its members and global admins.
"""

__version__ = "0.1.0"
