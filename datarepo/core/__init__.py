"""Configuration, logging, errors, include directives and database wiring"""
