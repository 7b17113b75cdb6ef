"""Authentication collaborator for the storage core.

Maps opaque bearer tokens to users and keeps WebAuthn challenges
between the two steps of a ceremony. The ceremony itself is verified
by an external library; only its verdict reaches this package.
"""
