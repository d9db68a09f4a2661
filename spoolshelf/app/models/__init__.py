from spoolshelf.app.models.filament import Filament

__all__ = [
    "Filament",
]
