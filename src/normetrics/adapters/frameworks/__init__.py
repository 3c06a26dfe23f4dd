"""Framework adapters. Importing them requires the optional framework."""
