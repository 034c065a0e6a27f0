from restmount.rest.v2023_01 import RESOURCES
