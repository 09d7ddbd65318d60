"""RFarm render farm worker pool manager."""
