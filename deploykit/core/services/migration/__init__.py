"""
Migration — carry apps over from a legacy management system.

``hybridizer`` decides per app whose detection rules and commands win;
``orchestrator`` runs that over a batch.
"""

from deploykit.core.services.migration.hybridizer import (  # noqa: F401
    HYBRID_LABEL_ONLY_WARNING,
    UNCONVERTIBLE_RULES_WARNING,
    blocking_reasons,
    build_migration_item,
    convert_app_for_migration,
    generate_migration_preview,
)
from deploykit.core.services.migration.orchestrator import (  # noqa: F401
    calculate_migration_stats,
    execute_migration_batch,
    group_by_migration_status,
    prepare_migrations,
)
