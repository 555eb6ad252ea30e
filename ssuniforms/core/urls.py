from django.urls import path
from .views import (
    EmailTokenObtainPairView, SafeTokenRefreshView, signup, logout, user_me,
    route_access, employee_list, employee_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/signup/', signup, name='signup'),
    path('auth/login/', EmailTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', SafeTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/route-access/', route_access, name='route-access'),

    # Employee endpoints
    path('employees/', employee_list, name='employee-list'),
    path('employees/<int:pk>/', employee_detail, name='employee-detail'),
]
