"""
Application Layer

Application services orchestrate the production domain: they load bundles
from repositories, drive the domain services, commit with compare-and-set
and publish the resulting domain events.

Components:
- services/: The production engine facade
"""
