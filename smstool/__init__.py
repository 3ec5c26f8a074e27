"""Send, list and delete SMS, run USSD and AT commands on serial modems, and encode or decode SMS PDUs."""

__version__ = "1.0.0"