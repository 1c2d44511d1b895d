from .unit_seeder import seed_units

__all__ = ['seed_units']
