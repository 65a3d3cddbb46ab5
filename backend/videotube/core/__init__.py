# videotube/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration, connection management and the store-call boundary
- errors: Error taxonomy rendered as the API error envelope
- responses: Success envelope helper
- security: Password hashing and JWT signing/verification
"""
