"""CV Tailor: job-specific CV generation from a professional profile"""

__version__ = "1.0.0"
