"""Probe and descriptor resources.

Usage
-----
Import the resources for route registration::

    from gruv.api.health.resources import HealthResource, ReadyResource
"""
