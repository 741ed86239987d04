"""
Record store integration (hotels, media, hotel_media tables).
"""
