"""
alert-relay notification dispatch service.

Routes Grafana alerts to PagerDuty and e-mail, and failed GitHub
workflow runs to chat, after ownership resolution and deduplication.
"""
