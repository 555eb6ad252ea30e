from django.urls import path
from .functions import create_admin, create_user, delete_user

urlpatterns = [
    path('create-admin', create_admin, name='function-create-admin'),
    path('create-user', create_user, name='function-create-user'),
    path('delete-user', delete_user, name='function-delete-user'),
]
