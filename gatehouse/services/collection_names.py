# gatehouse/services/collection_names.py
"""Collection names (schema-in-code).

The document store has no DDL: a collection exists as soon as a document is
written into it. Use these constants so names stay consistent everywhere.
"""

VISITORS = "visitors"        # visitors and contractors, told apart by `type`
USERS = "users"
EMPLOYEES = "employees"
COMPANIES = "companies"
SETTINGS = "settings"
DEBUG_TESTS = "debug_tests"

SETTINGS_DOC_ID = "app"

VISITOR_TYPE = "visitor"
CONTRACTOR_TYPE = "contractor"
