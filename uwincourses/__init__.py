"""
uwincourses – course search over the UWindsor registration portal.

Scrapes term/course data from the portal, keeps a persistent full-text
index of course summaries and fetches full course details on demand.
"""
