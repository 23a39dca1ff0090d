"""Fleet app package.

Rental locations, the vehicles stationed at them and their scheduled
maintenance. Vehicles with a pending service appointment inside a
requested period are not offered for rent.
"""
