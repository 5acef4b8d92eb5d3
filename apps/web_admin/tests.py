from django.test import TestCase


class DashboardPageTests(TestCase):
    def test_dashboard_shell_is_public(self):
        resp = self.client.get("/admin")
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Cleaning Store Admin")
        self.assertContains(resp, 'data-api-base="/api"')
