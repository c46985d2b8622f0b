"""
Incident processors for the incident-management platform.

- Email dispatch: sends plain-text, HTML or image-bearing email from bus messages
- Incident-org provisioning: associates organizations with incidents and
  creates their collaboration rooms through em-api
"""
