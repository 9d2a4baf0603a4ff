"""
Authentication application (Identity Gate).

Key components:
    - User model: Email-based user with a credential version counter
    - tokens: Token issuance and the shared credential check
    - VersionedJWTAuthentication: REST authentication class
    - AuthService: Registration, password change, forced logout

Usage:
    from authentication.models import User
    from authentication.tokens import authenticate_token, issue_token_pair
"""
