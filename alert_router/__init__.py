"""
CloudWatch Alert Router

Routes CloudWatch alarm state changes to Slack channels and PagerDuty services
based on the alarm's resource tags, attaching a chart of the alarm's metric.
"""

__version__ = '1.0.0'
