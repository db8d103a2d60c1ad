import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Which projection engine backs cell centers and boundaries.
# Only "h3" ships with the package.
PROJECTION_BACKEND = os.getenv("HEXGRID_PROJECTION_BACKEND", "h3")

# Two boundary points are the same vertex when the straight-line (chord)
# distance between them on the unit sphere is at most this. Unitless.
VERTEX_TOLERANCE_CHORD = float(os.getenv("HEXGRID_VERTEX_TOLERANCE_CHORD", "1e-9"))
