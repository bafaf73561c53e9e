"""
inventory_agent

Collects hostname, OS distribution and package inventory of the machine it
runs on and reports each field as an attribute to a remote attribute store.
"""
