# Services package.
#
# Each module exposes a focused set of async functions for one concern:
#
#   article_service    — nested reads, atomic create and cascade delete for Article
#   user_service       — profile read, sparse update and login for User
#   assistant_service  — session start and message pass-through to the assistant
#
# Database-backed functions accept an AsyncSession as their first argument.
# The session's lifetime is owned by the ``get_db`` dependency; writes
# open their own ``UnitOfWork`` on it.
