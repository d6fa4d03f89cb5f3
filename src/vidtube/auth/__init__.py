"""Authentication and authorization.

- tokens: access/refresh JWT issuance and verification
- password: bcrypt hashing
- cookies: session cookie helpers
- dependencies: the request gate (cookie or Bearer → CurrentIdentity)
- policy: ownership checks for mutations on owned resources
"""
