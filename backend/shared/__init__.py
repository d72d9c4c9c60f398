"""
Shared module for code common to the REST API and the CLI.

STRUCTURE:
- shared.security: Claims resolution, authentication, token management
  - claims.py: Principal resolution from auth responses / token claims
  - auth.py: Staff JWTs, customer table tokens, current_principal
  - password.py: Bcrypt hashing
  - token_blacklist.py: Redis-based token revocation
  - rate_limit.py: Login rate limiting

- shared.infrastructure: Database and Redis
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID propagation
  - redis_client.py: Shared Redis connection pool

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, OrderStatus, transition tables

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_principal
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, VersionConflictError
"""
