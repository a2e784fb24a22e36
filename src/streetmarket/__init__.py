"""StreetMarket — local marketplace simulator.

Customers browse nearby street vendors, fill a cart that may span several
vendors, and place immediate or scheduled orders. Vendors accept and complete
their orders. A recurring proximity scan tells customers when an active
vendor is close by.
"""
