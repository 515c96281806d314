"""Domain Interfaces (Ports):

Abstract Base Classes for the console and the download sink. Core services
depend on these contracts; the infrastructure layer provides the
implementations.
"""
