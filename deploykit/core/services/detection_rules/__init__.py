"""
Detection rule engine — ``__init__.py`` re-exports the public functions.

Everything in this package is pure: no I/O, no shared state, identical
output for identical input. Safe to call from any number of threads.
"""

from deploykit.core.services.detection_rules.commands import (  # noqa: F401
    GENERIC_UNINSTALL,
    MSIX_UNINSTALL_PREFIX,
    PACKAGE_FAMILY_PLACEHOLDER,
    PRODUCT_CODE_PLACEHOLDER,
    REGISTRY_UNINSTALL_PREFIX,
    archive_target,
    build_install_command,
    build_uninstall_command,
    extract_silent_switches,
    installer_file_name,
)
from deploykit.core.services.detection_rules.legacy import (  # noqa: F401
    convert_legacy_rule,
    convert_legacy_rules,
)
from deploykit.core.services.detection_rules.sanitize import (  # noqa: F401
    FALLBACK_FOLDER_NAME,
    MAX_FOLDER_NAME_LENGTH,
    build_registry_key_path,
    resolve_install_folder,
    sanitize_folder_name,
    sanitize_identifier_for_registry,
)
from deploykit.core.services.detection_rules.synthesis import (  # noqa: F401
    appx_presence_script,
    folder_rule,
    synthesize,
)
from deploykit.core.services.detection_rules.validation import (  # noqa: F401
    EMPTY_RULE_SET,
    validate_commands,
    validate_rules,
)
