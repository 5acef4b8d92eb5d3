# apps/web_admin/views.py
from django.shortcuts import render
from django.views import View


class AdminDashboardView(View):
    """
    Static shell; login and every dashboard action go through the JSON API.
    """
    def get(self, request):
        context = {
            "api_base": "/api",
        }
        return render(request, 'web_admin/dashboard.html', context)
