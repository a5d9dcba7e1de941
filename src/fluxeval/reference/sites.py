"""Default evaluation sites."""

# Mediterranean shrubland (Amoladeras, Spain) and evergreen broadleaf
# forest (Puechabon, France).
DEFAULT_SITES: tuple[str, ...] = ("ES-Amo", "FR-Pue")
