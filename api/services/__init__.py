"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
session first and raises core.exceptions errors instead of HTTP errors.
"""

from api.services.applications import (
    get_application,
    list_applications,
    create_application,
    update_application,
    update_application_status,
    get_timeline,
    recent_status_changes,
)

from api.services.cascade import (
    cascade_delete_applications,
    delete_application,
    delete_company,
    delete_user,
)

from api.services.analytics import (
    overview,
    status_distribution,
    average_time_in_status,
    status_activity,
)

from api.services.companies import (
    create_company,
    update_company,
    get_company,
    list_companies,
)

from api.services.documents import (
    create_document,
    list_documents,
    set_visibility,
    delete_document,
    open_shared_document,
)

from api.services.keywords import (
    get_or_create_keyword,
    add_keyword,
    list_application_keywords,
    skill_match_summary,
)

from api.services.users import (
    create_user,
    get_user,
    update_profile,
)

__all__ = [
    # Applications
    "get_application",
    "list_applications",
    "create_application",
    "update_application",
    "update_application_status",
    "get_timeline",
    "recent_status_changes",
    # Cascade deletion
    "cascade_delete_applications",
    "delete_application",
    "delete_company",
    "delete_user",
    # Analytics
    "overview",
    "status_distribution",
    "average_time_in_status",
    "status_activity",
    # Companies
    "create_company",
    "update_company",
    "get_company",
    "list_companies",
    # Documents
    "create_document",
    "list_documents",
    "set_visibility",
    "delete_document",
    "open_shared_document",
    # Keywords
    "get_or_create_keyword",
    "add_keyword",
    "list_application_keywords",
    "skill_match_summary",
    # Users
    "create_user",
    "get_user",
    "update_profile",
]
