"""
Small building blocks shared by the connector and sentinel packages: event sources, value object mixins
and the retry state used by a failover cycle.
"""
