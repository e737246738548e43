"""
Shared Components

Constants, exceptions, models, configuration and logging used by every
NetHub client component.
"""
