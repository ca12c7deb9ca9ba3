# shop_project/wsgi.py

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'shop_project.settings')

# Vercel looks for a module-level 'app'
app = get_wsgi_application()
