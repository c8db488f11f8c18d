"""TrialQuote - clinical-trial liability insurance quoting and underwriting."""

__version__ = "0.1.0"
