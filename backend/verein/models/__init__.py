# Models package init
from verein.models.verein import Adresse, Email, Umsatz, Verein

__all__ = ["Adresse", "Email", "Umsatz", "Verein"]
