from orbitalz.nft import main

main()
