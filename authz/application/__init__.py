"""Application layer: interfaces, services, DTOs.

Depends only on domain and protocol definitions (DIP).
"""
