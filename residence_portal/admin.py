from django.contrib import admin

# Customize admin site
admin.site.site_header = "Residence Portal - Admin Panel"
admin.site.site_title = "Residence Portal Admin"
admin.site.index_title = "Residences, residents and fees"
