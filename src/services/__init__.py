"""
Background services for the Nest telemetry poller
"""

from .nest_poller import NestPoller

__all__ = ['NestPoller']
